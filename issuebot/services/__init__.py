"""
Local services: subprocesses, git and temporary workspaces.
"""
