"""
Mockview: AI Mock Interview Assistant

Ingests a PDF resume, runs an adaptive AI-led mock interview against a
job description, and produces structured feedback.
"""

__version__ = "0.1.0"
__license__ = "MIT"
