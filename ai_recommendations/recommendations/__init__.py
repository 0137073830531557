"""
AI property recommendation engine.

Responsibilities:
- Merge stated profile preferences with recent viewing behaviour.
- Score active catalog listings on weighted preference factors and
  discovery potential.
- Interleave preference and discovery matches into one ranking.
- Decorate the top results with LLM explanations and summarise viewing
  patterns into insights, without ever depending on the LLM for ranking.
"""
