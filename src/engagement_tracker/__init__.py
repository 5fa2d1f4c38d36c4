"""
engagement_tracker package

Console tool for recording and querying security assessment engagements.
All data lives in one JSON file (default: engagements.json).

Layered architecture:
- domain.py: entities + normalization rules
- business_days.py: date parsing and business day count
- persistence.py: JSON storage, migration of old files
- selector.py: client selection
- service.py: metrics
- export.py: CSV report
- config.py: startup options + logging
- view.py: console output
- controller.py: menu orchestration
- main.py: entry point
"""

__version__ = "1.0.0"
