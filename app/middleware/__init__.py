from app.middleware.analytics import AnalyticsMiddleware

__all__ = ["AnalyticsMiddleware"]
