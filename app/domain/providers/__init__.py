"""Providers domain - Nearby mechanics, live location, jobs and offer inbox"""
