from .quoter import QuoterRouteProvider

__all__ = ["QuoterRouteProvider"]
