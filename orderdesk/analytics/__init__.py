"""Windowed order analytics in the restaurant's local calendar"""
