"""Market data MCP manifest — tool definitions."""

from shared.schemas.tools import InputSchema, PropertySchema, ToolDefinition

SYMBOL = PropertySchema(
    type="string",
    description="Stock ticker symbol (e.g., AAPL, MSFT, GOOGL)",
)

TOOLS = [
    ToolDefinition(
        name="get_stock_overview",
        title="Stock Overview",
        description=(
            "Get a comprehensive overview of a stock including current quote, "
            "company information, and key financial metrics. This provides everything "
            "needed for a quick assessment of a company's current status and basic fundamentals."
        ),
        input_schema=InputSchema(
            properties={"symbol": SYMBOL},
            required=["symbol"],
        ),
    ),
    ToolDefinition(
        name="get_stock_analysis",
        title="Stock Analysis",
        description=(
            "Get comprehensive stock analysis including analyst recommendations, "
            "insider insights, performance metrics, and recent news. This tool provides "
            "the data needed for investment analysis and decision making."
        ),
        input_schema=InputSchema(
            properties={
                "symbol": SYMBOL,
                "includeNews": PropertySchema(
                    type="boolean",
                    description="Whether to include recent news articles (default: true)",
                    default=True,
                ),
                "newsCount": PropertySchema(
                    type="number",
                    description="Number of news articles to include (default: 5, max: 20)",
                    default=5,
                    minimum=1,
                    maximum=20,
                ),
            },
            required=["symbol"],
        ),
    ),
    ToolDefinition(
        name="get_market_intelligence",
        title="Market Intelligence",
        description=(
            "Get market intelligence including trending stocks, stock screening by "
            "criteria, and symbol search. This tool helps identify market opportunities and trends."
        ),
        input_schema=InputSchema(
            properties={
                "action": PropertySchema(
                    type="string",
                    description="Type of market intelligence to retrieve",
                    enum=["trending", "screener", "search"],
                ),
                "region": PropertySchema(
                    type="string",
                    description="Region for trending symbols (default: US)",
                    default="US",
                ),
                "screenerType": PropertySchema(
                    type="string",
                    description="Type of stock screener to use",
                    enum=[
                        "most_actives",
                        "day_gainers",
                        "day_losers",
                        "growth_stocks",
                        "undervalued_growth_stocks",
                    ],
                ),
                "searchQuery": PropertySchema(
                    type="string",
                    description="Search query for symbol lookup",
                ),
                "count": PropertySchema(
                    type="number",
                    description="Number of results to return (default: 25, max: 50)",
                    default=25,
                    minimum=1,
                    maximum=50,
                ),
            },
            required=["action"],
        ),
    ),
    ToolDefinition(
        name="get_financial_deep_dive",
        title="Financial Deep Dive",
        description=(
            "Get detailed financial information including income statements, balance "
            "sheets, cash flow statements, and fund/ETF holdings. This tool provides "
            "comprehensive financial data for in-depth analysis."
        ),
        input_schema=InputSchema(
            properties={
                "symbol": PropertySchema(
                    type="string",
                    description="Stock, ETF, or mutual fund ticker symbol",
                ),
            },
            required=["symbol"],
        ),
    ),
    ToolDefinition(
        name="get_news_and_research",
        title="News and Research",
        description=(
            "Get news articles, read full article content, or search for symbols. "
            "This tool provides comprehensive access to news and research content."
        ),
        input_schema=InputSchema(
            properties={
                "action": PropertySchema(
                    type="string",
                    description="Type of news/research action to perform",
                    enum=["news", "read", "search"],
                ),
                "symbol": PropertySchema(
                    type="string",
                    description="Stock ticker symbol (required for 'news' action)",
                ),
                "query": PropertySchema(
                    type="string",
                    description="Search query (required for 'search' action)",
                ),
                "url": PropertySchema(
                    type="string",
                    description=(
                        "Article URL to read (required for 'read' action, "
                        "must start with https://finance.yahoo.com/)"
                    ),
                ),
                "count": PropertySchema(
                    type="number",
                    description="Number of results to return (default: 10, max: 25)",
                    default=10,
                    minimum=1,
                    maximum=25,
                ),
            },
            required=["action"],
        ),
    ),
]

FEATURES = ["json-response", "sse-streaming"]
