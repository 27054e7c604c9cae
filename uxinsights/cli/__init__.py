# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for the uxinsights aggregation engine.

Commands are organized into separate modules for maintainability:
- shared.py: Common utilities, constants, and helpers
- report.py: Block report and flow graph commands
- heatmap.py: Heatmap rendering command
- config.py: Configuration display
"""
