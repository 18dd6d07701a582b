"""Adapters - 外部サービス（Firestore 等）による Port 実装"""
