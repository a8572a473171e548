"""
Device Vital Monitor Backend
============================

This is the Python package for the backend API.

HOW IT'S ORGANIZED:
------------------
- models/    = Data structures (what does a reading look like?)
- storage/   = Where readings are kept (SQLAlchemy)
- services/  = Workers (validate, store, page, aggregate, report)
- routers/   = API endpoints (the doors into our app)
- utils/     = Validation and rate limiting helpers
- main.py    = Puts it all together and starts the server
- reporter.py = Runs the client that posts this machine's vitals
"""
