"""Escrow service data contract"""
