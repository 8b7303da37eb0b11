"""内置资源：配置目录在磁盘上不存在时的回退位置。"""
