"""Threat pattern data"""
