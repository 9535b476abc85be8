"""Domain exceptions"""
