"""
Kernel layer: persistence models shared by the engines and the API.
"""
