"""
Threading and event helpers shared by the relay components.
"""
