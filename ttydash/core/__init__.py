"""ttydash.core — рушій рендерингу і розкладки.

Чисті модулі, NO I/O: series (вікно семплів), grid (розбиття на панелі),
barchart (квантування стовпчиків), buffer/block (символьний кадр і рамки).
"""
