"""
Remote Host Access.

Every command that reaches the managed server is built in commands.py,
run through executor.py and read back by parsers.py.
"""
