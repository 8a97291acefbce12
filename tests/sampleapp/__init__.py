"""Sample application used by the dispatch tests."""
