"""Intermediate representation: types, values, instructions, blocks, functions and classes."""