"""assetgraft: edit and transplant the object graph of cooked asset packages."""

__version__ = "0.3.0"
