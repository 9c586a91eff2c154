"""
Command-line entrypoints, built from functions decorated with `utils.entrypoint`.
"""
