"""Intent classification and dispatch core"""
