"""控制台练习程序：chat（函数调用 + 中间件）与 quiz（出题判分）。"""
