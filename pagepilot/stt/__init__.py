"""Speech-to-text for uploaded recordings"""
