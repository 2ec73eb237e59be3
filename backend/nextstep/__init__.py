"""
NextStep engagement backend.

Businesses post opportunities, students apply, and the engine in
`nextstep.modules` moves each engagement from submission to a rated outcome.
"""
