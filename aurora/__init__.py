"""Aurora Personality - MBTI test backend"""
