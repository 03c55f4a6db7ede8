"""CorpDate API: matching, paid dinner meetings and contact unlocks for professionals."""
