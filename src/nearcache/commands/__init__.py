"""Built-in CLI sub-commands for nearcache.

* :mod:`~nearcache.commands.cache` -- inspect and manage the on-disk cache.
* :mod:`~nearcache.commands.fetch` -- load the home feed or profile through
  the cache, falling back to the API.
* :mod:`~nearcache.commands.config` -- view and modify global settings.

Each module exports a :class:`typer.Typer` sub-application registered on
the root app in :mod:`nearcache.app`. :mod:`~nearcache.commands.common`
holds the helpers they share.
"""
