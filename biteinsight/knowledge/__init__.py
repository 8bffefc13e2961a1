"""
Knowledge Module - Profile tags, rule tables and ingredient facts
"""
