"""SDBA race registration and admin API."""
