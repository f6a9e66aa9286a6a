"""
Marketing Service

Sales and marketing management microservice providing:
- Campaigns per branch with embedded marketing plans
- Dashboard KPIs and chart series for a month or date range
- Calendar year list and month grid
- Reference data (branches, categories, event types, users)

Port: 8260
"""

__version__ = "1.0.0"
__service__ = "marketing_service"
