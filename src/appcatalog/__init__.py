"""appcatalog -- application catalog persistence and access control.

Packages::

    appcatalog.core      errors, logging, settings, dialects, connections,
                         transaction scopes, schema
    appcatalog.catalog   entities, lifecycle, repositories, ApplicationManager
    appcatalog.cli       ``appcatalog`` command line
"""

__version__ = "0.1.0"
