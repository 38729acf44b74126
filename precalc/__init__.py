"""osu! 譜面の全mod組み合わせについて star rating / pp を事前計算するパッケージ。"""
