"""Main trace column layout read by the virtual bus.

Columns are grouped into segments laid out left to right:

    | system (8) | decoder (24) | stack (19) | range checker (2) | chiplets (18) |
"""

# --- System ---

SYS_TRACE_OFFSET = 0
SYS_TRACE_WIDTH = 8

# --- Decoder ---

DECODER_TRACE_OFFSET = SYS_TRACE_OFFSET + SYS_TRACE_WIDTH
DECODER_TRACE_WIDTH = 24

# Layout: | addr | b0 .. b6 | hasher state (8) | in_span | group_count | ...
NUM_OP_BITS = 7
DECODER_OP_BITS_OFFSET = DECODER_TRACE_OFFSET + 1
DECODER_HASHER_STATE_OFFSET = DECODER_OP_BITS_OFFSET + NUM_OP_BITS + 1

# User operation helpers overlay the second half of the hasher state.
NUM_USER_OP_HELPERS = 6
DECODER_USER_OP_HELPERS_OFFSET = DECODER_HASHER_STATE_OFFSET + 2

# --- Stack ---

STACK_TRACE_OFFSET = DECODER_TRACE_OFFSET + DECODER_TRACE_WIDTH
STACK_TRACE_WIDTH = 19

# --- Range Checker ---

RANGE_CHECK_TRACE_OFFSET = STACK_TRACE_OFFSET + STACK_TRACE_WIDTH
RANGE_CHECK_TRACE_WIDTH = 2

# Multiplicity of each looked-up value
M_COL_IDX = RANGE_CHECK_TRACE_OFFSET
# Table of range checked values
V_COL_IDX = RANGE_CHECK_TRACE_OFFSET + 1

# --- Chiplets ---

CHIPLETS_OFFSET = RANGE_CHECK_TRACE_OFFSET + RANGE_CHECK_TRACE_WIDTH
CHIPLETS_WIDTH = 18

# Memory rows are selected by s0 = 1, s1 = 1, s2 = 0.
MEMORY_SELECTORS_OFFSET = CHIPLETS_OFFSET
MEMORY_TRACE_OFFSET = CHIPLETS_OFFSET + 3

# Memory layout: | s0 s1 | ctx | addr | clk | v0 .. v3 | d0 | d1 | d_inv |
MEMORY_D0_COL_IDX = MEMORY_TRACE_OFFSET + 9
MEMORY_D1_COL_IDX = MEMORY_TRACE_OFFSET + 10

# --- Totals ---

TRACE_WIDTH = CHIPLETS_OFFSET + CHIPLETS_WIDTH
