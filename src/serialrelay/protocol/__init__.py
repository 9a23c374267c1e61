"""
Framing of the raw device byte stream into text messages.
"""
