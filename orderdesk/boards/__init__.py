"""Live staff boards"""
