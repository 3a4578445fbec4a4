"""Interpreter booking lifecycle backend"""
