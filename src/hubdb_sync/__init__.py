"""Mirror a paginated course catalog into a HubDB table."""

__version__ = "1.0.0"
