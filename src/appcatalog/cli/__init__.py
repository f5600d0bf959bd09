"""Command line interface (``appcatalog``)."""
