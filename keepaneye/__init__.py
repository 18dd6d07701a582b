"""keepaneye - 繰り返しスケジュールの生成・照合エンジン"""
