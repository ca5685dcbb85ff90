"""
colaw - Ingestion de legislacion colombiana del Gestor Normativo (Funcion Publica).
"""
