"""
Lumi Learning Coach
Lesson, quiz and tutoring-chat generation backed by Supabase and Gemini
"""

__version__ = "0.1.0"
