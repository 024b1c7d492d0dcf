"""growthlab - goals, AI diagnosis and growth experiment cycles."""

__version__ = "0.1.0"
__logo__ = "📈"
