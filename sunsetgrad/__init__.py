"""
Sunset sky gradient driven by live webcam images
"""
__version__ = '1.0.0'
