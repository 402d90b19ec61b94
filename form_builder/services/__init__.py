"""Form engine services"""
