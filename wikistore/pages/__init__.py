"""Wiki pages: the page entity, its wire codec and the versioned page store."""

from wikistore.pages.codec import (
    decode_page,
    encode_log,
    encode_page,
    format_timestamp,
    log_entry_from_dict,
    log_entry_to_dict,
    page_from_dict,
    page_to_dict,
    parse_timestamp,
)
from wikistore.pages.errors import (
    DecodeError,
    HistoryUnavailableWarning,
    InvalidTitleError,
    PageError,
    PageNotFoundError,
    StorageIOError,
)
from wikistore.pages.models import PAGE_SUFFIX, Page, page_file_name, validate_title
from wikistore.pages.store import PageStore

__all__ = [
    # Errors
    'DecodeError',
    'HistoryUnavailableWarning',
    'InvalidTitleError',
    'PageError',
    'PageNotFoundError',
    'StorageIOError',
    # Components
    'PageStore',
    # Models
    'PAGE_SUFFIX',
    'Page',
    'page_file_name',
    'validate_title',
    # Codec
    'decode_page',
    'encode_log',
    'encode_page',
    'format_timestamp',
    'log_entry_from_dict',
    'log_entry_to_dict',
    'page_from_dict',
    'page_to_dict',
    'parse_timestamp',
]
