"""
MusicGen API Gateway
Backend for the MusicGen mobile app: auth, credits, tracks and Suno proxying
"""

__version__ = "1.0.0"
