"""Chess Coach: grades your moves with a UCI engine and explains them."""

__version__ = "0.1.0"
