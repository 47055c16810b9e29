"""Taskiq broker and tasks.

Workers run with ``taskiq worker listing_engine.taskiq_app.broker:broker``.
"""
