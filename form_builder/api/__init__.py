"""HTTP adapter"""
