"""
Top-level entry point: python -m zone_operator <command>

Commands:
    run        reconcile all DNSZone resources in a loop (or once with --once)
    reconcile  single pass for one resource
    classify   show the root-domain classification of a name
"""

from .cli import main


if __name__ == "__main__":
    main()
