from .query_lang import (
    TextQueryError,
    MalformedQuery,
    Token,
    Word,
    QuotedPhrase,
    And,
    Or,
    Minus,
    Around,
    Open,
    Close,
    tokenize,
    to_debug_string,
)

from .tsquery import (
    PG_QUERY_MARKER,
    generate_query_text,
    compile_query,
    normalize_query,
    is_compiled,
    strip_marker,
)

from .fragments import (
    build_rank,
    build_rank_order,
    build_where,
    build_headline,
)

from .order import compile_order

from .options import (
    RankFunction,
    RankOptions,
    SearchOptions,
    parse_rank_options,
    parse_search_options,
)

from .config import TextSearchConfig, load_config

from .search import (
    FullTextQuery,
    build_full_text_query,
    run_full_text_query,
    get_conn,
)
