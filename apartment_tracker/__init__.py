"""
Apartment Tracker - keep track of listings during an apartment search.

Listings, votes, workflow status, comments, visit appointments and travel
times to a few reference addresses, served over a small FastAPI app.
"""

__version__ = "0.1.0"
