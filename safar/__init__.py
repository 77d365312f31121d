"""Safar: budget trip itineraries generated from traveller preferences."""
