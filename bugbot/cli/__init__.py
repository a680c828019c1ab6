"""
Command-line interface of BugBot.
"""
