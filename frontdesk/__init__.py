"""
frontdesk - conversational receptionist between chat channels and an LLM agent
"""

__version__ = "0.1.0"
