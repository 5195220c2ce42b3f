"""
pagecritic - multi-platform website performance consolidation.

Fetches audits from several performance-testing providers, normalizes them
into a shared metric schema and consolidates them into one weighted result.

Modules:
    platforms - provider adapters, registry, health and fetch orchestrator
    consolidation - weighted category scores and Web Vital selection
    view - flat projection for display and export consumers
    analyze - end-to-end analysis of a single URL
    export - CSV and JSON export of an analysis
    insights - LLM insight formatting, generation and caching
    cli - command-line entrypoint
"""

__version__ = "1.2.0"
