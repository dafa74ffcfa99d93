"""
Terminal presentation for phplogtail.

Modules:
    - views: curses render loop for the live viewer
    - render: entry formatting and search shared with the CLI

Architecture:
    The viewer uses a producer-consumer pattern:
    1. The watch session's watcher threads poll the log file
    2. Events are pushed onto a queue (QueueSink)
    3. The main curses loop drains the queue and renders
"""
