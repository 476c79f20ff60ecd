"""
AISQL: Natural Language to SQL at the terminal

Reads a database schema once, asks a hosted completion model to write SQL
for each question, and runs the query only after explicit confirmation.
"""

__version__ = "0.1.0"
