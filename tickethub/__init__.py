"""
TicketHub - Full-text search for a ticket and discussion tracker.

Example:
    >>> from tickethub.domains.search import SearchIndexStore, SearchService
    >>> service = SearchService(SearchIndexStore("data/tickethub.db"), records)
    >>> page = await service.search("login bug status:open")
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
