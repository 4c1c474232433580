"""Process metric collectors"""
