"""Constant pool reading, instruction decoding, visitors, the listing dumper and the IR frontend."""