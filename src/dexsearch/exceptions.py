"""
DexSearch Exception Hierarchy

Structured exceptions for the query engine, the browser facade and the
CLI.  Each exception type maps to a specific failure mode so that callers
can handle errors precisely without parsing message strings.

Missing or partial game data is *not* an error: unknown ids are treated
as non-existent entries and simply never show up in results.  Only usage
errors (an unsupported sort column, a filter on a category that has no
filterable attributes) and unreadable data files raise.

Usage::

    from dexsearch.exceptions import DexSearchError, InvalidSortError

    try:
        rows = search.typed_search.get_results(None, "weight", False)
    except InvalidSortError:
        print("That column cannot be sorted.")
    except DexSearchError as exc:
        print(f"DexSearch error: {exc}")
"""


class DexSearchError(Exception):
    """Base exception for all DexSearch errors."""


class ConfigError(DexSearchError, ValueError):
    """Configuration is invalid (e.g. a negative instafilter threshold).

    Inherits from ``ValueError`` so callers validating user input can
    catch it alongside other value errors.
    """


class DataLoadError(DexSearchError):
    """A data table exists on disk but could not be parsed."""


class IndexNotFoundError(DexSearchError, FileNotFoundError):
    """No search index exists at the expected path.

    Inherits from ``FileNotFoundError`` for intuitive exception handling.
    """


class InvalidSortError(DexSearchError, ValueError):
    """The requested sort column is not supported by the active category."""


class InvalidFilterError(DexSearchError, ValueError):
    """The active category does not support structural filters at all."""
