"""Employee Directory package.

Organised by feature modules (employees, users) with a thin Flask controller
layer on top of service/repository layers.
"""
