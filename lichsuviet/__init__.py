"""Lich Su Viet - Vietnamese history portal server."""
