"""Order, event and staff stores"""
