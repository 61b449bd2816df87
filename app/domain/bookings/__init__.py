"""Bookings domain - Booking lifecycle, offers, chat, items and attachments"""
