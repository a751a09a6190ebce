"""
DockMaster AI

Service-shop workflow backend for marinas. Turns a customer service request
into a priced work order and customer estimate (Request → Extraction →
Diagnostics → Work Order → Margin Check), with a proactive outreach board.
"""

__version__ = "1.0.0"
