"""State-derivation engine.

The public entry points are `get_app_state` (read) and the functions in
`trickle.engine.mutations` (write).
"""
