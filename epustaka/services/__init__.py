"""Application services layer (state, persistence, auth, reports).

Services coordinate work across domains and infrastructure (local store,
spreadsheet mirror, LLM calls). They should avoid UI concerns.
"""
