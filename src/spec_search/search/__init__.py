"""
Search pipeline building blocks.

- tokenizer: query string -> lowercase terms
- matching: substring containment, occurrence counts, highlight ranges
- scoring: per-match and per-document relevance scores
- snippet: context windows for long content lines
- curation: dedup of nearby content hits and per-document caps
- query_parser: boolean / phrase / field-filter query syntax
"""
