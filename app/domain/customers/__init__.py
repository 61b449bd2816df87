"""Customers domain - Vehicles, saved places, booking history and counts"""
