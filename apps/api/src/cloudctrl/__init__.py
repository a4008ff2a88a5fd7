"""CloudCtrl dashboard API: credential store, provider resolvers and response cache."""

__version__ = "0.1.0"
