"""Catalog domain - Service categories and the services providers offer"""
